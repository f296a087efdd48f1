"""Client and models for the npm registry."""