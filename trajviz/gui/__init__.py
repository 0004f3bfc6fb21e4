"""
GUI logic of the visualizers.

The camera, labels, selection and scenario picker are plain Python; the
PyQt6 widgets live in ``gui.widgets`` and ``gui.app`` and are imported only
when the desktop visualizer starts.
"""
