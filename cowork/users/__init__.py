"""Course members (professors and students) stored in `usuarios`."""
