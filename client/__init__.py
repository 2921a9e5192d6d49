"""Sonar quality gate client."""
