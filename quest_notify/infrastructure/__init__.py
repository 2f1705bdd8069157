"""Infrastructure layer: persistence, transports and realtime delivery."""
