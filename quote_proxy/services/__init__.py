"""Service layer - request pipeline and usage tracking."""
