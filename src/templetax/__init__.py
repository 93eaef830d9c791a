"""Temple trust tax administration backend."""
