# Reference seed data and its loader
