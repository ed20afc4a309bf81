"""Infrastructure layer — state database, device probing, identity backend, contact stores."""
