"""Domain types and pure logic for backend connectivity."""
