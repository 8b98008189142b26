"""ifcopenshell adapter."""
