"""Foundation layer: errors, configuration and the schema adapter."""
