"""Client and models for the GitHub REST API."""