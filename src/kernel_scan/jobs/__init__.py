"""Source discovery and Slurm dispatch around the core scanner."""
