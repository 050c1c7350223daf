"""Service layer: domain services and the container that wires them."""
