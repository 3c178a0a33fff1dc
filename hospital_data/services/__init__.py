# Store wiring and shared helpers
