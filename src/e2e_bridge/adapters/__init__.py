"""Adapters: the HTTP client, the route cache, the browser navigator and the server half."""
