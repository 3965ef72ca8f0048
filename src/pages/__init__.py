"""Server-side page prefetch and client bootstrap."""
