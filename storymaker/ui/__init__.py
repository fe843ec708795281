"""Example front ends. The core never imports from this package."""
