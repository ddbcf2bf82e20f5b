"""Static asset pipeline and application scaffold for boiler sites."""
