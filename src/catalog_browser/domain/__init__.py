"""Pure domain logic: aliases, name matching, error descriptions, favourites."""
