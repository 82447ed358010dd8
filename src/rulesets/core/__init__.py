"""Rulesets core: document model, providers, and the compilation pipeline."""
