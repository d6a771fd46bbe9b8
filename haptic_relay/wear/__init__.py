"""Wearable side: peer commands in, vibration pulses out."""
