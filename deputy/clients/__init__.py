"""Asynchronous clients for crates.io, npm, GitHub and Wally, with request caching."""