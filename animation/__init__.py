"""Frame-indexed curves and the stage timeline."""
