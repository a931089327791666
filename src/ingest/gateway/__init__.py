"""Gateway — serves traffic from a build manifest alone."""
