"""GUI package: roster table widget, view model and supporting services."""
