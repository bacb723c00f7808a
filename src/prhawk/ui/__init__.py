"""Terminal output for PRHawk."""
