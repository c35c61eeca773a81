"""Event check-in service: time-boxed QR/passcode sessions with live updates."""
