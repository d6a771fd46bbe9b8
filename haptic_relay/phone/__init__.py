"""Phone side: broker / websocket in, wearable commands out."""
