"""Path geometry and playback engine for the fieldpath terminal."""
