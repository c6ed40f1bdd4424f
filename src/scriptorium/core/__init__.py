"""Core types, contracts and configuration."""
