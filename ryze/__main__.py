from ryze.main import main

main()
