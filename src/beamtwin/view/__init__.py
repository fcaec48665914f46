"""Qt/PyVista view layer."""
