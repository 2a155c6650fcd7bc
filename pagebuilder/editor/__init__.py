"""Editor schemas - declarative field forms, path accessors and validation."""
