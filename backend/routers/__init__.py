"""HTTP routers for the chat relay."""
