"""Versioned JSON contracts consumed and produced by bynamectl."""
