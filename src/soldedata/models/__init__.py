"""Configuration, strategy and result models shared by the pipeline."""
