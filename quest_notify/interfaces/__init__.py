"""HTTP and websocket interfaces."""
