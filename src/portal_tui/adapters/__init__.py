"""Host UI adapters for the portal console core."""
