"""Domain layer: order workflow rules, ports, and the error taxonomy."""
