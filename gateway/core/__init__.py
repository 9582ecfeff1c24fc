"""Settings, logging and HTTP exception handling."""
