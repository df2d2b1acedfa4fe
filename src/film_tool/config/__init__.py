"""Config subpackage - settings and paths."""
