"""Analysis stages over a built dependency graph."""
