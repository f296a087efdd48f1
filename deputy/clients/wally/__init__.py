"""Client and models for Wally package indexes hosted on GitHub."""