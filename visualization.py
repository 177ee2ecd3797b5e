# visualization.py
"""
Handles the visualization of the particle simulation using Pygame.

The renderer reads particle positions and species after each step and
draws one sprite per particle. The side panel doubles as a control panel:
every edit it makes is queued on the InteractionConfig and only takes
effect on the next step boundary.
"""
import logging
import pygame
import numpy as np
from particle import ParticleSystem
from parameters import ConfigurationError, InteractionConfig
from constants import (
    BACKGROUND_COLOR, DEFAULT_PARTICLE_SCALES, DEFAULT_WINDOW_SIZE, FULLSCREEN,
    RING_SPECIES_THRESHOLD, SPRITE_SCALE_RANGE, TUNABLE_PARAMETERS, UI_BACKGROUND_ALPHA,
    UI_PANEL_WIDTH, VIBRANT_COLORS
)
from typing import Dict, List, Optional, Sequence, Tuple


# --- Data Contracts ---
#
# world_to_screen(positions, sim_width, sim_height) -> np.ndarray:
#   - Inputs: (N, 2) world positions; the view spans [-aspect, aspect] x [-1, 1]
#     with aspect = sim_width / sim_height.
#   - Outputs: (N, 2) int32 pixel coordinates, y pointing down.
#
# class Visualizer:
#   - __init__(self, particle_types: int, colors: Optional[list] = None,
#              scales: Optional[list] = None, fullscreen: bool = FULLSCREEN,
#              window_size: Sequence[int] = DEFAULT_WINDOW_SIZE):
#     - Side Effects: Initializes Pygame and creates a display surface.
#
#   - draw(self, particles: ParticleSystem, config: InteractionConfig) -> bool:
#     - Outputs:
#       - bool: False if the user has quit, True otherwise.
#     - Side Effects: Renders particles and UI to the screen, handles Pygame
#       events, and queues configuration edits based on user input.


def world_to_screen(positions: np.ndarray, sim_width: int, sim_height: int) -> np.ndarray:
    """Maps world coordinates to pixels with an orthographic projection."""
    aspect = sim_width / sim_height
    screen = np.empty(positions.shape, dtype=np.int32)
    screen[:, 0] = ((positions[:, 0] / aspect + 1.0) * 0.5 * sim_width).astype(np.int32)
    screen[:, 1] = ((1.0 - positions[:, 1]) * 0.5 * sim_height).astype(np.int32)
    return screen


def sprite_radius(scale: float, sim_height: int) -> int:
    """Pixel radius of a sprite whose diameter is `scale` world units."""
    return max(1, int(round(scale * sim_height / 4.0)))


def resolve_palette(
    particle_types: int, config_values: Optional[list], defaults: list, label: str
) -> list:
    """
    Returns one entry per species: the configured values, completed or
    truncated with the defaults (cycled when there are more species).
    """
    default_values = [defaults[i % len(defaults)] for i in range(particle_types)]
    if not config_values:
        logging.info(f"No {label} found in config. Using default palette.")
        return default_values

    values = list(config_values)
    if len(values) < particle_types:
        logging.warning(
            f"Config provides {len(values)} {label}, but {particle_types} are needed. "
            f"Using defaults for the remaining {particle_types - len(values)}."
        )
        values.extend(default_values[len(values):])
    elif len(values) > particle_types:
        logging.warning(
            f"Config provides {len(values)} {label}, but only {particle_types} are needed. "
            f"Ignoring excess {label}."
        )
        values = values[:particle_types]
    return values


class Visualizer:
    """
    Renders the particle system state and provides the control panel.
    """
    def __init__(
        self,
        particle_types: int,
        colors: Optional[list] = None,
        scales: Optional[list] = None,
        fullscreen: bool = FULLSCREEN,
        window_size: Sequence[int] = DEFAULT_WINDOW_SIZE
    ):
        """
        Initializes Pygame and the display window.
        """
        pygame.init()
        pygame.font.init()

        if fullscreen:
            display_info = pygame.display.Info()
            width, height = display_info.current_w, display_info.current_h
            self.screen = pygame.display.set_mode((width, height), pygame.FULLSCREEN)
        else:
            width, height = int(window_size[0]) + UI_PANEL_WIDTH, int(window_size[1])
            self.screen = pygame.display.set_mode((width, height), pygame.RESIZABLE)

        pygame.display.set_caption("Particle Life")
        self.clock = pygame.time.Clock()
        self.particle_types = particle_types

        self.colors = self._initialize_colors(particle_types, colors)
        self.scales = [float(s) for s in resolve_palette(
            particle_types, scales, DEFAULT_PARTICLE_SCALES, "particle scales")]

        try:
            self.font_title = pygame.font.SysFont("Segoe UI", 16, bold=True)
            self.font_main = pygame.font.SysFont("Segoe UI", 14)
        except pygame.error:
            logging.warning("Segoe UI font not found, falling back to default sans-serif.")
            self.font_title = pygame.font.SysFont(None, 20, bold=True)
            self.font_main = pygame.font.SysFont(None, 18)

        self.label_margin = 20
        self.cell_size = 40
        self.cell_padding = 2
        self.label_circle_radius = 8
        self.param_row_height = 26
        self.hovered_cell: Optional[Tuple[int, int]] = None
        self.hovered_param: Optional[str] = None
        self.hovered_scale: Optional[int] = None
        self.scroll_sensitivity = 0.05

        self.button_color = (80, 80, 80)
        self.button_hover_color = (110, 110, 110)
        self.text_color_title = (255, 255, 255)
        self.text_color_key = (200, 200, 200)
        self.param_box_color = (60, 60, 60)

        self._layout(width, height)
        logging.info(f"Visualizer initialized with Pygame display ({width}x{height}).")

    @property
    def aspect(self) -> float:
        return self.sim_width / self.sim_height

    @property
    def domain_half_extent(self) -> Tuple[float, float]:
        """Half extent of the visible world for the current window."""
        return (self.aspect, 1.0)

    def _layout(self, width: int, height: int) -> None:
        """Computes the simulation area and panel geometry for a window size."""
        # The simulation area is the total width minus the UI panel
        self.sim_width = max(1, width - UI_PANEL_WIDTH)
        self.sim_height = max(1, height)
        self.sim_surface = pygame.Surface((self.sim_width, self.sim_height))
        self.ui_panel_surface = pygame.Surface((UI_PANEL_WIDTH, self.sim_height), pygame.SRCALPHA)
        self.ui_panel_surface.fill((40, 40, 40, UI_BACKGROUND_ALPHA))
        self.radii = [sprite_radius(s, self.sim_height) for s in self.scales]

        self.matrix_pos = (self.sim_width + 30, 10 + self.label_margin)
        matrix_pixel_size = self.particle_types * (self.cell_size + self.cell_padding) - self.cell_padding
        button_y = self.matrix_pos[1] + matrix_pixel_size + 10
        self.reset_button_rect = pygame.Rect(self.matrix_pos[0], button_y, matrix_pixel_size, 30)
        self.randomize_button_rect = pygame.Rect(
            self.matrix_pos[0], self.reset_button_rect.bottom + 5, matrix_pixel_size, 30)

        self.param_rects: Dict[str, pygame.Rect] = {}
        current_y = self.randomize_button_rect.bottom + 20
        panel_width = UI_PANEL_WIDTH - 40
        for name in TUNABLE_PARAMETERS:
            self.param_rects[name] = pygame.Rect(self.matrix_pos[0], current_y, panel_width, self.param_row_height)
            current_y += self.param_row_height + 4

        # One row per species for its sprite scale
        self.scale_rects: Dict[int, pygame.Rect] = {}
        current_y += 10
        for species in range(self.particle_types):
            self.scale_rects[species] = pygame.Rect(self.matrix_pos[0], current_y, panel_width, self.param_row_height)
            current_y += self.param_row_height + 4

    def _initialize_colors(self, particle_types: int, config_colors: Optional[list]) -> List[pygame.Color]:
        """Initializes species colors from config, falling back to the default palette."""
        try:
            values = resolve_palette(particle_types, config_colors, VIBRANT_COLORS, "colors")
            return [pygame.Color(*rgb) if isinstance(rgb, (list, tuple)) else pygame.Color(rgb) for rgb in values]
        except (ValueError, TypeError) as e:
            logging.error(f"Could not parse colors from config due to invalid format: {e}. Falling back to default palette.")
            return [pygame.Color(*VIBRANT_COLORS[i % len(VIBRANT_COLORS)]) for i in range(particle_types)]

    def _get_matrix_cell_from_pos(self, pos: Tuple[int, int]) -> Optional[Tuple[int, int]]:
        """
        Converts a screen position to matrix cell coordinates if hovering over the matrix.
        """
        mx, my = self.matrix_pos
        for r in range(self.particle_types):
            for c in range(self.particle_types):
                cell_x = mx + c * (self.cell_size + self.cell_padding)
                cell_y = my + r * (self.cell_size + self.cell_padding)
                if pygame.Rect(cell_x, cell_y, self.cell_size, self.cell_size).collidepoint(pos):
                    return (r, c)
        return None

    def _get_param_from_pos(self, pos: Tuple[int, int]) -> Optional[str]:
        for name, rect in self.param_rects.items():
            if rect.collidepoint(pos):
                return name
        return None

    def _get_scale_from_pos(self, pos: Tuple[int, int]) -> Optional[int]:
        for species, rect in self.scale_rects.items():
            if rect.collidepoint(pos):
                return species
        return None

    def set_sprite_scale(self, species: int, scale: float) -> None:
        """Changes the sprite diameter of one species, clamped to the panel range."""
        low, high, _ = SPRITE_SCALE_RANGE
        self.scales[species] = round(float(np.clip(scale, low, high)), 4)
        self.radii[species] = sprite_radius(self.scales[species], self.sim_height)
        logging.info(f"Sprite scale of species {species} set to {self.scales[species]:.3f}.")

    def _handle_wheel(self, config: InteractionConfig, direction: int) -> None:
        """
        Queues a matrix or parameter edit for one mouse wheel notch.

        Steps from the queued value, so several notches within one frame add up.
        Sprite scales belong to the view and change immediately.
        """
        try:
            if self.hovered_cell:
                r, c = self.hovered_cell
                old_value = config.pending_coefficient(r, c)
                new_value = float(np.clip(old_value + direction * self.scroll_sensitivity, -1.0, 1.0))
                config.request_coefficient(r, c, round(new_value, 3))
            elif self.hovered_param:
                low, high, step = TUNABLE_PARAMETERS[self.hovered_param]
                old_value = config.pending_parameter(self.hovered_param)
                new_value = float(np.clip(old_value + direction * step, low, high))
                config.request_parameter(self.hovered_param, round(new_value, 4))
            elif self.hovered_scale is not None:
                species = self.hovered_scale
                self.set_sprite_scale(species, self.scales[species] + direction * SPRITE_SCALE_RANGE[2])
        except ConfigurationError as e:
            logging.warning(f"Control panel edit rejected: {e}")

    def _draw_interaction_matrix(self, config: InteractionConfig):
        """Renders the interaction matrix, its labels, and highlights the hovered cell."""
        matrix = config.interaction_matrix
        rows, cols = matrix.shape
        step = self.cell_size + self.cell_padding

        for i in range(rows):
            center = (self.matrix_pos[0] - self.label_margin / 2, self.matrix_pos[1] + i * step + self.cell_size / 2)
            pygame.draw.circle(self.screen, self.colors[i], center, self.label_circle_radius)
        for i in range(cols):
            center = (self.matrix_pos[0] + i * step + self.cell_size / 2, self.matrix_pos[1] - self.label_margin / 2)
            pygame.draw.circle(self.screen, self.colors[i], center, self.label_circle_radius)

        for r in range(rows):
            for c in range(cols):
                value = float(matrix[r, c])
                # Green for attraction, red for repulsion
                color_intensity = min(255, int(200 * abs(value)) + 30)
                if value > 0:
                    bg_color = (0, color_intensity, 0)
                elif value < 0:
                    bg_color = (color_intensity, 0, 0)
                else:
                    bg_color = (50, 50, 50)

                cell_rect = pygame.Rect(self.matrix_pos[0] + c * step, self.matrix_pos[1] + r * step,
                                        self.cell_size, self.cell_size)
                pygame.draw.rect(self.screen, bg_color, cell_rect)
                if self.hovered_cell == (r, c):
                    pygame.draw.rect(self.screen, (255, 255, 0), cell_rect, 2)

                text_surf = self.font_main.render(f"{value:.2f}", True, self.text_color_title)
                self.screen.blit(text_surf, text_surf.get_rect(center=cell_rect.center))

    def _draw_button(self, rect: pygame.Rect, label: str, mouse_pos: Tuple[int, int]):
        color = self.button_hover_color if rect.collidepoint(mouse_pos) else self.button_color
        pygame.draw.rect(self.screen, color, rect, border_radius=5)
        text_surf = self.font_main.render(label, True, self.text_color_title)
        self.screen.blit(text_surf, text_surf.get_rect(center=rect.center))

    def _draw_parameters(self, config: InteractionConfig):
        """Renders the tunable parameters; hovering a row and scrolling edits it."""
        for name, rect in self.param_rects.items():
            pygame.draw.rect(self.screen, self.param_box_color, rect, border_radius=6)
            if self.hovered_param == name:
                pygame.draw.rect(self.screen, (255, 255, 0), rect, 1, border_radius=6)
            key_surf = self.font_main.render(name.replace('_', ' ').title(), True, self.text_color_key)
            value_surf = self.font_main.render(f"{getattr(config, name):.2f}", True, self.text_color_title)
            self.screen.blit(key_surf, key_surf.get_rect(midleft=(rect.left + 8, rect.centery)))
            self.screen.blit(value_surf, value_surf.get_rect(midright=(rect.right - 8, rect.centery)))

        for species, rect in self.scale_rects.items():
            pygame.draw.rect(self.screen, self.param_box_color, rect, border_radius=6)
            if self.hovered_scale == species:
                pygame.draw.rect(self.screen, (255, 255, 0), rect, 1, border_radius=6)
            pygame.draw.circle(self.screen, self.colors[species], (rect.left + 14, rect.centery), 6)
            key_surf = self.font_main.render(f"Scale {species}", True, self.text_color_key)
            value_surf = self.font_main.render(f"{self.scales[species]:.3f}", True, self.text_color_title)
            self.screen.blit(key_surf, key_surf.get_rect(midleft=(rect.left + 28, rect.centery)))
            self.screen.blit(value_surf, value_surf.get_rect(midright=(rect.right - 8, rect.centery)))

    def _draw_particles(self, particles: ParticleSystem):
        """Draws discs for the low species and rings for the others."""
        screen_pos = world_to_screen(particles.positions, self.sim_width, self.sim_height)
        for species in range(self.particle_types):
            color = self.colors[species]
            radius = self.radii[species]
            ring_width = max(1, radius // 2) if species > RING_SPECIES_THRESHOLD else 0
            for x, y in screen_pos[particles.types == species]:
                pygame.draw.circle(self.sim_surface, color, (int(x), int(y)), radius, ring_width)

    def draw(self, particles: ParticleSystem, config: InteractionConfig) -> bool:
        """
        Draws all particles and UI, and handles events.

        Returns:
            bool: False if the simulation should exit, True otherwise.
        """
        mouse_pos = pygame.mouse.get_pos()
        self.hovered_cell = self._get_matrix_cell_from_pos(mouse_pos)
        self.hovered_param = self._get_param_from_pos(mouse_pos)
        self.hovered_scale = self._get_scale_from_pos(mouse_pos)

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                logging.info("Quit event received. Shutting down visualizer.")
                return False

            if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                logging.info("ESC key pressed. Shutting down visualizer.")
                return False

            if event.type == pygame.VIDEORESIZE:
                # Only the view changes; the simulation domain keeps its extent.
                self.screen = pygame.display.set_mode((event.w, event.h), pygame.RESIZABLE)
                self._layout(event.w, event.h)
                logging.info(f"Window resized to {event.w}x{event.h}.")

            if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                if self.reset_button_rect.collidepoint(mouse_pos):
                    config.request_reset()
                    logging.info("Interaction matrix reset to all zeros by user.")
                elif self.randomize_button_rect.collidepoint(mouse_pos):
                    config.request_randomize()
                    logging.info("Interaction matrix randomized by user.")

            if event.type == pygame.MOUSEWHEEL:
                # event.y is 1 for scroll up, -1 for scroll down
                self._handle_wheel(config, event.y)

        self.sim_surface.fill(BACKGROUND_COLOR)
        self._draw_particles(particles)
        self.screen.blit(self.sim_surface, (0, 0))

        self.screen.blit(self.ui_panel_surface, (self.sim_width, 0))
        self._draw_interaction_matrix(config)
        self._draw_button(self.reset_button_rect, "Reset", mouse_pos)
        self._draw_button(self.randomize_button_rect, "Randomize", mouse_pos)
        self._draw_parameters(config)

        pygame.display.flip()
        return True

    def tick(self, fps: int) -> None:
        """Caps the frame rate."""
        self.clock.tick(fps)

    def close(self):
        """Shuts down Pygame."""
        pygame.font.quit()
        pygame.quit()
