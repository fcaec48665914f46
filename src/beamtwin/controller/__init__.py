"""
Frame Pipeline
==============
Runs the per-frame cycle: normalise -> infer -> post-process -> colourise
-> deform.

Note: This package should NOT import PySide6. The viewer drives it through
DigitalTwinController.tick().
"""
