"""PowerDash desktop app and command line."""
