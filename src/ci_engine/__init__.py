"""
CrateCI engine: environment-driven build/test/coverage/fuzz pipeline for a Rust crate.
"""
