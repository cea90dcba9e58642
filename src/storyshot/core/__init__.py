"""Core domain package for storyshot.

Core contains config resolution, story matching and snapshot naming without
any HTTP or filesystem-specific code, keeping the business logic portable.
"""
