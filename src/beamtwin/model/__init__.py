"""
The MODEL layer contains pure data structures and the frame arithmetic.
It has NO knowledge of the GUI (Qt), the Visualization (PyVista) or the
inference backend (Torch). It deals with Scalers, Physics and Colour ramps.
"""
