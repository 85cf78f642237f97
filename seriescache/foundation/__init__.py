"""Foundation layer: configuration, errors and metric helpers."""
