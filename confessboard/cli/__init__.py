"""confessboard CLI Module - Command handlers for the command line interface."""
