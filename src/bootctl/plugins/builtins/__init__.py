"""Built-in plugins registered by the runtime before discovery."""
