"""Tool hosting and server assembly."""
