"""Users, memberships and invitations."""
