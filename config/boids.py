"""Configuration for the parallel 2D boids simulation."""

WINDOW = {
    "width": 1920,
    "height": 1200,
    "title": "Boids Example",
    "fps": 360,
}

FLOCK = {
    "count": 1024,
    "velocity": (20.0, 20.0),
    "angular_velocity": 1.0,
    "max_rotation": 6,          # Spawn headings are whole radians in [0, 6]
    # Nose first, then the two tail corners (local space, heading 0 = up)
    "shape": ((0.0, -5.0), (-5.0, 5.0), (5.0, 5.0)),
}

POLICY = {
    "perception_radius": 60.0,  # How far boids can see neighbors
    "separation_radius": 15.0,  # Minimum comfortable distance
    "separation_weight": 1.5,   # Avoid crowding
    "alignment_weight": 1.0,    # Match neighbor headings
    "cohesion_weight": 0.8,     # Move toward group center
    "inertia_weight": 1.0,      # Keep current heading
    "max_dt": 0.1,              # Clamp elapsed time after stalls
}

PARALLEL = {
    "threads": None,            # None = os.cpu_count()
}

METRICS = {
    "title": "Boids Performance Metrics",
    "fps": 60,
    "count": 5000,
    "benchmark_frames": 100,
    "report_interval": 1.0,     # Seconds between HUD average refreshes
    "results_file": "speedup_data.txt",
}

EQUIVALENCE = {
    "count": 50,
    "frames": 100,
    "tolerance": 1e-1,
    "seed": 42690,
    "dt": 1.0 / 60.0,
    "frame_delay": 0.001,       # Realtime mode only
    "max_errors_shown": 3,
}

QUICK_CHECK = {
    "count": 16,
    "frames": 10,
    "tolerance": 1e-3,
    "seed": 12345,
}

COLORS = {
    "background": (0.96, 0.96, 0.96, 1.0),  # RAYWHITE
    "boid": (0.0, 0.47, 0.95),              # BLUE
    "text": (230, 41, 55),                  # RED, pygame 0-255 range
}
