# constants.py
"""
Application-level constants.

These values are static and do not change between simulation runs.
They are fundamental to the application's framework, such as the nominal
step duration, the boundary margin, rendering properties, or default
window sizes that are not part of the experimental configuration.
"""

# --- Core physics settings ---
# Nominal duration of one step (one animation frame at 60 FPS).
# The effective step is BASE_STEP_DURATION * time_scale.
BASE_STEP_DURATION = 1.0 / 60.0
# Particles are teleported once they pass this multiple of the half extent.
BOUNDARY_MARGIN = 1.2
# Below this distance two particles are treated as coincident.
COINCIDENT_EPSILON = 1e-4

# Defaults for the tunable simulation parameters.
DEFAULT_INTERACTION_RADIUS = 0.2
DEFAULT_TRANSITION_RADIUS = 0.4
DEFAULT_FORCE_SCALE = 20.0
DEFAULT_TIME_SCALE = 0.4
DEFAULT_FRICTION_FACTOR = 0.7
DEFAULT_DOMAIN_HALF_EXTENT = (16.0 / 9.0, 1.0)

# Row i holds the coefficients felt by species i due to each species j.
DEFAULT_INTERACTION_MATRIX = [
    [0.2, 0.1, -0.1, 0.0, 0.03, 0.0],
    [0.03, 0.0, -0.2, 0.2, 0.1, 0.0],
    [0.1, 0.0, 0.0, 0.0, 0.0, -0.2],
    [0.0, 0.2, -0.2, 0.0, 0.03, 0.0],
    [0.03, 0.0, 0.0, 0.01, -0.01, 0.01],
    [0.001, 0.001, 0.01, 0.001, -0.3, 0.0],
]

# Visualization settings
FULLSCREEN = False
DEFAULT_WINDOW_SIZE = (1500, 800)
UI_PANEL_WIDTH = 300
FPS = 60
BACKGROUND_COLOR = (0, 0, 0)
# Alpha for the UI panel background
UI_BACKGROUND_ALPHA = 100
# Species with an index above this are drawn as rings instead of discs.
RING_SPECIES_THRESHOLD = 2

# Per-species default palette, used if the config file does not provide
# a color list.
VIBRANT_COLORS = [
    (153, 51, 255),  # Amethyst Purple
    (0, 204, 255),   # Electric Blue
    (255, 51, 204),  # Hot Pink
    (255, 215, 0),   # Gold
    (0, 255, 102),   # Emerald Green
    (255, 255, 255)  # White
]

# Sprite diameter per species, in world units (the view is 2 units tall).
DEFAULT_PARTICLE_SCALES = [0.015, 0.015, 0.025, 0.015, 0.025, 0.025]

# Control panel ranges: name -> (min, max, step)
TUNABLE_PARAMETERS = {
    "time_scale": (0.01, 1.0, 0.01),
    "interaction_radius": (0.01, 1.0, 0.01),
    "transition_radius": (0.01, 0.99, 0.01),
    "force_scale": (1.0, 100.0, 1.0),
}
# Control panel range for the per-species sprite scales: (min, max, step)
SPRITE_SCALE_RANGE = (0.01, 0.05, 0.001)
