"""Assessment coordinator and configuration."""
