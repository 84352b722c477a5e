"""HTTP surface for the Jigesh account core"""
