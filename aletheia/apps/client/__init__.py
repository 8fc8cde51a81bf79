"""Session layer: gateway client, controllers, persistence and views."""
