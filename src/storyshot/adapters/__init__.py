"""Adapters connecting the core to Storybook, config files and the filesystem."""
