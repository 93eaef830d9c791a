"""Domain services: stores, the liability calculator and its orchestration."""
