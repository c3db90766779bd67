# Business logic services
