"""Client and models for the crates.io API and sparse index."""