action = "not callable"
