"""Mode-dispatching section renderer with typed fallbacks."""
