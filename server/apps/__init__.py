"""Django applications of the project."""
