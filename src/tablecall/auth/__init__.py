"""Authentication: JWT tokens for restaurant owners, bcrypt passwords."""
