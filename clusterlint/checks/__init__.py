"""Built-in checks; importing a module registers the checks it defines."""