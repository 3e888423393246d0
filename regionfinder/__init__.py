"""Region resolution and boundary filtering for a geolocated person directory."""
