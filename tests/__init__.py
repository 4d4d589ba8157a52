"""Tests - shuffle step circuits, folding engine and driver."""
