"""Infrastructure layer - provider client and outbound rate gate."""
