"""Student records API: users, students and photo uploads."""
