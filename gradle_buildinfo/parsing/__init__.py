"""Text-level parsers for Gradle build scripts and CLI output."""
