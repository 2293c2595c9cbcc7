from inventory_service.run import main

if __name__ == "__main__":
    main()
