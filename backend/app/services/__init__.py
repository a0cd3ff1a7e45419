"""Domain services: order lifecycle, delivery, inventory ledger, customers and payroll."""
