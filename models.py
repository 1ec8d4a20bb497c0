from flask_login import UserMixin
from flask_sqlalchemy import SQLAlchemy

# Create the SQLAlchemy instance
db = SQLAlchemy()

class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)

    def display_info(self):
        return f"User: {self.username}"

class InventoryItem(db.Model):
    __tablename__ = 'inventory'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    cost = db.Column(db.Float, nullable=False)

    def display_info(self):
        return f"#{self.id} {self.name} - quantity: {self.quantity}, cost: {self.cost:.2f}"

class Project(db.Model):
    __tablename__ = 'projects'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    materials = db.relationship('ProjectMaterial', back_populates='project',
                                order_by='ProjectMaterial.id', cascade='all, delete-orphan')

    def display_info(self):
        return f"#{self.id} {self.name} ({len(self.materials)} materials)"

class ProjectMaterial(db.Model):
    __tablename__ = 'project_materials'

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey('projects.id'), nullable=False)
    # Cleared when the material is removed; the assignment row stays
    material_id = db.Column(db.Integer, db.ForeignKey('inventory.id'))
    quantity = db.Column(db.Integer, nullable=False)

    project = db.relationship('Project', back_populates='materials')
    material = db.relationship('InventoryItem')

    def display_info(self):
        name = self.material.name if self.material else '(removed material)'
        return f"{name} x {self.quantity}"

class Expense(db.Model):
    __tablename__ = 'expenses'

    id = db.Column(db.Integer, primary_key=True)
    description = db.Column(db.String(255), nullable=False)
    amount = db.Column(db.Float, nullable=False)

    def display_info(self):
        return f"#{self.id} {self.description}: {self.amount:.2f}"

class Sale(db.Model):
    __tablename__ = 'sales'

    id = db.Column(db.Integer, primary_key=True)
    item = db.Column(db.String(100), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Float, nullable=False)

    @property
    def total(self):
        return self.price * self.quantity

    def display_info(self):
        return (f"#{self.id} {self.item} - quantity: {self.quantity}, "
                f"price: {self.price:.2f}, total: {self.total:.2f}")
